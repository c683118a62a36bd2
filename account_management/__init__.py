"""
Account Management Module for CarLeads
Password and magic-link authentication, invites, user and VA administration
"""
