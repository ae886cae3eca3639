"""Thin HTTP surfaces that do not warrant a full domain package"""
