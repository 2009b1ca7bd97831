"""Availability domain - bookable time slots published by resource owners"""
