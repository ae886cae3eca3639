"""Maid marketplace API"""
