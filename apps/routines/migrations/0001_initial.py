import apps.routines.models
import datetime
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('departments', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='RoutineTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('routine_days', models.JSONField(blank=True, default=list, help_text='Weekdays the routine runs on (0=Sunday .. 6=Saturday)', validators=[apps.routines.models.validate_routine_days])),
                ('default_start_time', models.TimeField(default=datetime.time(9, 0))),
                ('duration_hours', models.DecimalField(decimal_places=2, default=1, help_text='Length of each generated task, in hours', max_digits=4)),
                ('checklist_template', models.JSONField(blank=True, default=list, help_text='Ordered checklist cloned into every generated task', validators=[apps.routines.models.validate_checklist_template])),
                ('start_date', models.DateField(blank=True, help_text='No tasks are generated before this date', null=True)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('department', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='routine_templates', to='departments.department')),
            ],
            options={
                'verbose_name': 'routine template',
                'verbose_name_plural': 'routine templates',
                'ordering': ['department__name', 'title'],
                'indexes': [models.Index(fields=['department', 'is_active'], name='routine_dept_active_idx')],
            },
        ),
    ]
