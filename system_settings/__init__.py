"""Key/value system settings"""
