from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('economy', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='coinwallet',
            name='first_chat_reward_claimed',
            field=models.BooleanField(default=False),
        ),
    ]
