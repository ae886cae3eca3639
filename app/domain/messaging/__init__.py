"""Messaging domain - gated per-job chat, attachments, read receipts and moderation"""
