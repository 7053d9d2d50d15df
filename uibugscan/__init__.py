"""
UI Bug Scanner - Main Package

Crawls a website, renders each page at several viewports and reports
layout, accessibility, visual, interaction and content defects with a
quality score.
"""

__version__ = '1.0.0'
__author__ = 'UI Quality Team'
__description__ = 'Automated UI defect scanner for websites'
