"""Navigator Secrets Meta information.
   Navigator Secrets reconciles locally declared secrets with an
   end-to-end encrypted remote store.
"""
__title__ = 'navigator_secrets'
__description__ = (
   'Navigator Secrets reconciles locally declared secrets with an '
   'end-to-end encrypted remote store.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/navigator-secrets'
