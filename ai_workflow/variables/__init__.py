"""
Template substitution module.
Resolves input, step output, and custom variable placeholders.
"""

from .substitution import TemplateSubstitutor, resolve_template

__all__ = ['TemplateSubstitutor', 'resolve_template']
