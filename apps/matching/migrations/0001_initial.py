import django.db.models.deletion
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
            name='Like',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('uuid', models.UUIDField(db_index=True, default=uuid.uuid4, editable=False, unique=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('revealed', 'Revealed'), ('chatting', 'Chatting'), ('declined', 'Declined'), ('passed', 'Passed'), ('archived', 'Archived')], db_index=True, default='pending', max_length=20)),
                ('is_blind_match', models.BooleanField(default=False, help_text='Created by a blind date where both chose to chat')),
                ('revealed_at', models.DateTimeField(blank=True, null=True)),
                ('chat_started_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('receiver', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='likes_received', to=settings.AUTH_USER_MODEL)),
                ('sender', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='likes_sent', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'likes',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['receiver', 'status'], name='like_receiver_status_idx'), models.Index(fields=['sender', 'status'], name='like_sender_status_idx')],
                'constraints': [models.UniqueConstraint(fields=('sender', 'receiver'), name='unique_like_per_pair')],
            },
        ),
    ]
