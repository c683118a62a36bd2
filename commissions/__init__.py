"""Commission tracking for VAs"""
