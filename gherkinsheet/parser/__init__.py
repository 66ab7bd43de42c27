"""Gherkin line classification, scope-tracking parser and outline expander"""
