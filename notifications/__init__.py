"""Outbound notifications"""
