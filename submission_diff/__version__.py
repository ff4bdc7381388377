"""
Package metadata.
"""

__title__ = 'submission-diff'
__description__ = 'Line-level diffs between a starter code archive and student submissions.'
__version__ = '0.1.0'
__author__ = 'submission-diff contributors'
__author_email__ = ''
__license__ = 'MIT'
__copyright__ = 'Copyright submission-diff contributors'
