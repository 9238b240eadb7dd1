import apps.routines.models
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Task',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('category', models.CharField(choices=[('jobdesk', 'Jobdesk'), ('tugas_tambahan', 'Tugas Tambahan'), ('inisiatif', 'Inisiatif'), ('request', 'Request')], default='jobdesk', max_length=20)),
                ('status', models.CharField(choices=[('todo', 'To Do'), ('in_progress', 'In Progress'), ('done', 'Done')], db_index=True, default='todo', max_length=15)),
                ('task_date', models.DateField(db_index=True)),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('is_routine', models.BooleanField(default=False)),
                ('routine_days', models.JSONField(blank=True, help_text='Weekdays this routine repeats on (0=Sunday .. 6=Saturday)', null=True, validators=[apps.routines.models.validate_routine_days])),
                ('attachment_required', models.BooleanField(default=False, help_text='Task cannot reach Done without at least one attachment')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, help_text='Empty for system-generated tasks', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_tasks', to=settings.AUTH_USER_MODEL)),
                ('staff', models.ForeignKey(help_text='Staff member who owns this task', on_delete=django.db.models.deletion.CASCADE, related_name='tasks', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'task',
                'verbose_name_plural': 'tasks',
                'ordering': ['task_date', 'start_time'],
                'indexes': [
                    models.Index(fields=['staff', 'task_date'], name='task_staff_date_idx'),
                    models.Index(fields=['staff', 'is_routine'], name='task_staff_routine_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('staff', 'task_date', 'title'), name='unique_task_per_staff_day_title'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ChecklistItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('text', models.CharField(max_length=500)),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('is_done', models.BooleanField(default=False)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('task', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='checklist_items', to='tasks.task')),
            ],
            options={
                'verbose_name': 'checklist item',
                'verbose_name_plural': 'checklist items',
                'ordering': ['sort_order', 'id'],
                'constraints': [
                    models.CheckConstraint(
                        condition=(
                            models.Q(('completed_at__isnull', False), ('is_done', True))
                            | models.Q(('completed_at__isnull', True), ('is_done', False))
                        ),
                        name='checklist_completed_at_matches_done',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='Attachment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('url', models.CharField(max_length=1000)),
                ('type', models.CharField(choices=[('link', 'Link'), ('image', 'Image'), ('file', 'File')], default='link', max_length=10)),
                ('uploaded_at', models.DateTimeField(auto_now_add=True)),
                ('task', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attachments', to='tasks.task')),
                ('uploaded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='task_attachments', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'attachment',
                'verbose_name_plural': 'attachments',
                'ordering': ['uploaded_at'],
            },
        ),
        migrations.CreateModel(
            name='TaskMention',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('notified_on_complete', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('task', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='mentions', to='tasks.task')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='task_mentions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'task mention',
                'verbose_name_plural': 'task mentions',
                'constraints': [
                    models.UniqueConstraint(fields=('task', 'user'), name='unique_mention_per_task_user'),
                ],
            },
        ),
    ]
