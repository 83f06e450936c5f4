"""Passbolt Session Meta information.
   Passbolt Session authenticates against a Passbolt vault server and
   submits encrypted secrets through the negotiated session.
"""
__title__ = 'passbolt_session'
__description__ = (
   'Passbolt Session authenticates against a Passbolt server '
   'and submits encrypted secrets through the negotiated session.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/passbolt-session'
