"""
Report generation: console, Markdown and JSON.
"""

from uibugscan.reporter.report import ReportGenerator, exit_code_for, group_findings

__all__ = ['ReportGenerator', 'exit_code_for', 'group_findings']
