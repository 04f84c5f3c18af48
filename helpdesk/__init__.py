"""
Helpdesk Intelligence - ticket intake and intelligent processing
"""

__version__ = "1.0.0"
