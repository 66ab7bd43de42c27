"""Spreadsheet and pipe-table converters"""
