"""Configuration and tag resolution"""
