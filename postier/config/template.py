"""Default configuration template.

This template is written to ~/.config/postier/config.toml
when running `postier config init`.
"""

CONFIG_TEMPLATE = """\
# Postier Configuration

[defaults]
downloads_dir = "~/Downloads"
default_folder = "INBOX"
display_format = "plain"
max_messages = 100
page_size = 10

# Add your email accounts below.
# Example local Maildir account searchable with notmuch:
#
# [accounts.local]
# default = true
# backends = ["maildir", "notmuch"]
# mail_dir = "~/Mail/Local"
#
# Example Gmail account with a local synchronization cache:
#
# [accounts.personal]
# email = "me@gmail.com"
# backends = ["gmail"]
# client_id = "xxxxxx.apps.googleusercontent.com"
# sync = true
# sync_exclude = ["SPAM", "TRASH"]
#
# For client_secret, use the POSTIER_GMAIL_CLIENT_SECRET environment variable.
#
# After adding a Gmail account, authenticate with:
#   postier account configure --account personal
"""
