import django.db.models.deletion
import django.utils.timezone
import uuid
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='BlindDateQueueEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('gender', models.CharField(choices=[('Man', 'Man'), ('Woman', 'Woman'), ('Non-binary', 'Non-binary')], max_length=16)),
                ('looking_for', models.CharField(choices=[('Men', 'Men'), ('Women', 'Women'), ('Everyone', 'Everyone')], max_length=16)),
                ('joined_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='blind_date_queue_entry', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name_plural': 'Blind date queue entries',
                'db_table': 'blind_date_queue',
                'ordering': ['joined_at'],
            },
        ),
        migrations.CreateModel(
            name='BlindDateSession',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('uuid', models.UUIDField(db_index=True, default=uuid.uuid4, editable=False, unique=True)),
                ('status', models.CharField(choices=[('active', 'Active'), ('extended', 'Extended'), ('ended', 'Ended')], db_index=True, default='active', max_length=16)),
                ('start_time', models.DateTimeField(default=django.utils.timezone.now)),
                ('expires_at', models.DateTimeField(db_index=True)),
                ('last_activity', models.DateTimeField(default=django.utils.timezone.now)),
                ('user1_choice', models.CharField(choices=[('none', 'None'), ('reveal', 'Reveal'), ('chat', 'Chat'), ('decline', 'Decline')], default='none', max_length=16)),
                ('user2_choice', models.CharField(choices=[('none', 'None'), ('reveal', 'Reveal'), ('chat', 'Chat'), ('decline', 'Decline')], default='none', max_length=16)),
                ('user1_revealed', models.BooleanField(default=False)),
                ('user2_revealed', models.BooleanField(default=False)),
                ('end_reason', models.CharField(blank=True, choices=[('expired', 'Expired'), ('abandoned', 'Abandoned'), ('ended_by_user', 'Ended by user'), ('declined', 'Declined')], max_length=16)),
                ('ended_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user1', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='blind_sessions_as_user1', to=settings.AUTH_USER_MODEL)),
                ('user2', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='blind_sessions_as_user2', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'blind_date_sessions',
                'ordering': ['-start_time'],
                'indexes': [models.Index(fields=['user1', 'status'], name='blind_session_user1_idx'), models.Index(fields=['user2', 'status'], name='blind_session_user2_idx'), models.Index(fields=['status', 'last_activity'], name='blind_session_activity_idx')],
            },
        ),
        migrations.CreateModel(
            name='BlindDateMessage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('text', models.TextField(help_text='Message content (max BLIND_MESSAGE_MAX_LENGTH characters)')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('sender', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='blind_messages_sent', to=settings.AUTH_USER_MODEL)),
                ('session', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='messages', to='blind_dating.blinddatesession')),
            ],
            options={
                'db_table': 'blind_date_messages',
                'ordering': ['created_at', 'id'],
            },
        ),
    ]
