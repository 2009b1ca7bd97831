"""Notification domain - in-app notifications produced by meeting events"""
