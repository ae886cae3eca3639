"""Notifications domain - in-app notifications emitted by lifecycle transitions"""
