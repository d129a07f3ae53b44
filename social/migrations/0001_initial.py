import django.contrib.auth.validators
import django.utils.timezone
from django.db import migrations, models

import social.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('email', models.EmailField(help_text='Unique account identifier used in follow relations', max_length=254, unique=True)),
                ('full_name', models.CharField(blank=True, help_text='Display name', max_length=150)),
                ('followers', models.JSONField(blank=True, default=list, help_text='Identifiers of accounts following this account', null=True)),
                ('following', models.JSONField(blank=True, default=list, help_text='Identifiers of accounts this account follows', null=True)),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
                'abstract': False,
            },
            managers=[
                ('objects', social.models.AccountManager()),
            ],
        ),
        migrations.CreateModel(
            name='Message',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sender_email', models.EmailField(db_index=True, help_text='Identifier of the sender', max_length=254)),
                ('sender_username', models.CharField(help_text='Sender username when the message was sent', max_length=150)),
                ('receiver_email', models.EmailField(blank=True, db_index=True, help_text='Identifier of the receiver', max_length=254)),
                ('receiver_username', models.CharField(blank=True, help_text='Receiver username when the message was sent', max_length=150)),
                ('content', models.TextField(help_text='Message text content')),
                ('type', models.CharField(choices=[('text', 'Text'), ('image', 'Image'), ('audio', 'Audio')], default='text', help_text='Type of message content', max_length=10)),
                ('image_uri', models.CharField(blank=True, help_text='Image attachment reference', max_length=500, null=True)),
                ('audio_uri', models.CharField(blank=True, help_text='Audio attachment reference', max_length=500, null=True)),
                ('reply_to_message_id', models.CharField(blank=True, help_text='Identifier of the message this one replies to', max_length=64, null=True)),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now, help_text='Message creation timestamp')),
                ('is_read', models.BooleanField(default=False, help_text='Receiver has read the message')),
                ('is_delivered', models.BooleanField(default=False, help_text='Message reached the store')),
                ('is_edited', models.BooleanField(default=False, help_text='Content changed after sending')),
                ('is_deleted', models.BooleanField(default=False, help_text='Sender deleted the message')),
                ('edited_at', models.DateTimeField(blank=True, help_text='Last edit timestamp', null=True)),
                ('deleted_at', models.DateTimeField(blank=True, help_text='Deletion timestamp', null=True)),
                ('group_id', models.CharField(blank=True, help_text='Group identifier for group messages', max_length=64, null=True)),
                ('is_group_message', models.BooleanField(default=False, help_text='True for group messages, excluded from direct conversations')),
            ],
            options={
                'ordering': ['-timestamp'],
                'indexes': [models.Index(fields=['receiver_email', 'is_read'], name='message_receiver_unread_idx')],
            },
        ),
    ]
