import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import managed_content_field.lib.fields
import managed_content_field.lib.validators


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ContentBundle',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', managed_content_field.lib.fields.MultiCollationCharField(db_collations={'mysql': 'utf8mb4_bin', 'sqlite': 'BINARY'}, max_length=255, unique=True)),
                ('label', managed_content_field.lib.fields.MultiCollationCharField(db_collations={'mysql': 'utf8mb4_unicode_ci', 'sqlite': 'NOCASE'}, max_length=255)),
                ('translatable', models.BooleanField(default=False)),
                ('untranslatable_fields_hide', models.BooleanField(default=False)),
                ('fields', models.JSONField(blank=True, default=list)),
                ('form_modes', models.JSONField(blank=True, default=dict)),
            ],
            options={
                'verbose_name': 'Content Bundle',
                'verbose_name_plural': 'Content Bundles',
            },
        ),
        migrations.CreateModel(
            name='ManagedEntity',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('uuid', models.UUIDField(default=uuid.uuid4, editable=False, unique=True, verbose_name='UUID')),
                ('langcode', models.CharField(max_length=12, validators=[managed_content_field.lib.validators.validate_langcode])),
                ('created', models.DateTimeField(validators=[managed_content_field.lib.validators.validate_utc_datetime])),
                ('bundle', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='entities', to='mcf_entities.contentbundle')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Managed Entity',
                'verbose_name_plural': 'Managed Entities',
            },
        ),
        migrations.CreateModel(
            name='ManagedEntityRevision',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('uuid', models.UUIDField(default=uuid.uuid4, editable=False, unique=True, verbose_name='UUID')),
                ('title', managed_content_field.lib.fields.MultiCollationCharField(blank=True, db_collations={'mysql': 'utf8mb4_unicode_ci', 'sqlite': 'NOCASE'}, default='', max_length=255)),
                ('data', models.JSONField(blank=True, default=dict)),
                ('translations', models.JSONField(blank=True, default=dict)),
                ('moderation_state', models.CharField(blank=True, default='', max_length=100)),
                ('published', models.BooleanField(default=False)),
                ('was_default_revision', models.BooleanField(default=False)),
                ('created', models.DateTimeField(validators=[managed_content_field.lib.validators.validate_utc_datetime])),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
                ('entity', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='revisions', to='mcf_entities.managedentity')),
            ],
            options={
                'verbose_name': 'Managed Entity Revision',
                'verbose_name_plural': 'Managed Entity Revisions',
            },
        ),
        migrations.AddField(
            model_name='managedentity',
            name='default_revision',
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='mcf_entities.managedentityrevision'),
        ),
        migrations.CreateModel(
            name='NestedComponent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('uuid', models.UUIDField(default=uuid.uuid4, editable=False, unique=True, verbose_name='UUID')),
                ('kind', managed_content_field.lib.fields.MultiCollationCharField(db_collations={'mysql': 'utf8mb4_bin', 'sqlite': 'BINARY'}, max_length=255)),
                ('created', models.DateTimeField(validators=[managed_content_field.lib.validators.validate_utc_datetime])),
            ],
            options={
                'verbose_name': 'Nested Component',
                'verbose_name_plural': 'Nested Components',
            },
        ),
        migrations.CreateModel(
            name='NestedComponentRevision',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('data', models.JSONField(blank=True, default=dict)),
                ('created', models.DateTimeField(validators=[managed_content_field.lib.validators.validate_utc_datetime])),
                ('component', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='revisions', to='mcf_entities.nestedcomponent')),
            ],
            options={
                'verbose_name': 'Nested Component Revision',
                'verbose_name_plural': 'Nested Component Revisions',
            },
        ),
        migrations.CreateModel(
            name='FieldItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('field_name', models.CharField(max_length=255)),
                ('delta', models.PositiveIntegerField()),
                ('host', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='field_items', to='mcf_entities.managedentity')),
                ('target', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='referenced_by', to='mcf_entities.managedentity')),
            ],
            options={
                'verbose_name': 'Field Item',
                'verbose_name_plural': 'Field Items',
                'ordering': ['host', 'field_name', 'delta'],
            },
        ),
        migrations.AddIndex(
            model_name='managedentity',
            index=models.Index(fields=['bundle', '-created'], name='mcf_ent_idx_bundle_rcreated'),
        ),
        migrations.AddIndex(
            model_name='managedentityrevision',
            index=models.Index(fields=['entity', '-id'], name='mcf_rev_idx_entity_rid'),
        ),
        migrations.AddIndex(
            model_name='managedentityrevision',
            index=models.Index(fields=['title'], name='mcf_rev_idx_title'),
        ),
        migrations.AddIndex(
            model_name='fielditem',
            index=models.Index(fields=['target', 'field_name'], name='mcf_item_idx_target_field'),
        ),
        migrations.AddConstraint(
            model_name='fielditem',
            constraint=models.UniqueConstraint(fields=('host', 'field_name', 'delta'), name='mcf_item_uniq_host_field_delta'),
        ),
    ]
