import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('files', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Share',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('token', models.CharField(help_text='URL-safe random capability token', max_length=64, unique=True)),
                ('expires_at', models.DateTimeField(db_index=True)),
                ('max_downloads', models.PositiveIntegerField(blank=True, help_text='Download limit, empty for unlimited', null=True)),
                ('download_count', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('file', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='shares', to='files.file')),
            ],
            options={
                'verbose_name': 'Share',
                'verbose_name_plural': 'Shares',
                'ordering': ['-created_at', '-id'],
                'constraints': [models.CheckConstraint(condition=models.Q(('max_downloads__isnull', True), ('download_count__lte', models.F('max_downloads')), _connector='OR'), name='shares_download_count_within_limit')],
            },
        ),
    ]
