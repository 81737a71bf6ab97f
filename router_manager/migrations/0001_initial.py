import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('accounts', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='POP',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('location', models.CharField(blank=True, max_length=255)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to='accounts.company')),
            ],
            options={
                'verbose_name': 'POP',
                'verbose_name_plural': 'POPs',
                'db_table': 'pops',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='MikrotikRouter',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('router_type', models.CharField(choices=[('mikrotik', 'MikroTik RouterOS')], default='mikrotik', max_length=20)),
                ('ip_address', models.GenericIPAddressField()),
                ('api_port', models.PositiveIntegerField(default=8728)),
                ('username', models.CharField(max_length=100)),
                ('encrypted_password', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('online', 'Online'), ('offline', 'Offline'), ('unknown', 'Unknown')], default='unknown', max_length=20)),
                ('last_connected_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to='accounts.company')),
                ('pop', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='routers', to='router_manager.pop')),
            ],
            options={
                'db_table': 'mikrotik_routers',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='MikrotikProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('rate_limit', models.CharField(blank=True, max_length=100)),
                ('local_address', models.CharField(blank=True, max_length=100)),
                ('remote_address', models.CharField(blank=True, max_length=100)),
                ('synced_at', models.DateTimeField(blank=True, null=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to='accounts.company')),
                ('router', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='profiles', to='router_manager.mikrotikrouter')),
            ],
            options={
                'db_table': 'mikrotik_profiles',
                'ordering': ['name'],
                'unique_together': {('router', 'name')},
            },
        ),
    ]
