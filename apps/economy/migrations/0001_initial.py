import apps.economy.models
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
            name='CoinWallet',
            fields=[
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, primary_key=True, related_name='coin_wallet', serialize=False, to=settings.AUTH_USER_MODEL)),
                ('balance', models.PositiveIntegerField(default=apps.economy.models.default_starting_coins, help_text='Current coin balance')),
                ('likes', models.PositiveIntegerField(default=apps.economy.models.default_free_likes, help_text='Likes left to send')),
                ('last_like_regen_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('chat_slots', models.PositiveIntegerField(default=apps.economy.models.default_chat_slots, help_text='Maximum number of simultaneous chats')),
                ('active_chat_count', models.PositiveIntegerField(default=0)),
                ('unlimited_coins_expiry', models.DateTimeField(blank=True, help_text='Coin costs are waived until this time', null=True)),
                ('total_earned', models.PositiveIntegerField(default=apps.economy.models.default_starting_coins, help_text='Total coins earned (including initial)')),
                ('total_spent', models.PositiveIntegerField(default=0, help_text='Total coins spent')),
                ('total_purchased', models.PositiveIntegerField(default=0, help_text='Total coins purchased with real money')),
                ('last_daily_reward_at', models.DateTimeField(blank=True, null=True)),
                ('profile_reward_claimed', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'coin_wallets',
                'constraints': [models.CheckConstraint(condition=models.Q(('active_chat_count__lte', models.F('chat_slots'))), name='wallet_active_chats_within_slots')],
            },
        ),
        migrations.CreateModel(
            name='CoinTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('uuid', models.UUIDField(db_index=True, default=uuid.uuid4, editable=False, unique=True)),
                ('amount', models.IntegerField(help_text='Positive for credit, negative for debit, zero when waived')),
                ('transaction_type', models.CharField(choices=[('purchase', 'Purchased with Money'), ('unlimited', 'Unlimited Plan Purchase'), ('reveal', 'Spent on Profile Reveal'), ('chat', 'Spent on Starting a Chat'), ('likes', 'Spent on Likes'), ('chat_slot', 'Spent on Chat Slot'), ('blind_date', 'Spent on Blind Date Choice'), ('reward', 'Earned as Reward'), ('referral', 'Referral Bonus'), ('refund', 'Refund'), ('admin', 'Admin Adjustment')], db_index=True, max_length=20)),
                ('balance_after', models.PositiveIntegerField(help_text='Balance after this transaction')),
                ('description', models.CharField(blank=True, max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('wallet', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='transactions', to='economy.coinwallet')),
            ],
            options={
                'db_table': 'coin_transactions',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['wallet', '-created_at'], name='coin_tx_wallet_idx'), models.Index(fields=['transaction_type', '-created_at'], name='coin_tx_type_idx')],
            },
        ),
    ]
