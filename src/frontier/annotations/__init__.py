"""Declarative annotations and their hierarchical resolution."""

from .base import (
    Annotation,
    AnnotationSource,
    AttributeAnnotationSource,
    Policy,
    Repeated,
    StaticAnnotationSource,
    annotate,
)
from .scopes import ResolutionContext, Scope, context_for
from .locator import AnnotationFamily, AnnotationLocator, Directive, DirectiveKind, KeyValue, locate


__all__ = [
    "Annotation",
    "AnnotationFamily",
    "AnnotationLocator",
    "AnnotationSource",
    "AttributeAnnotationSource",
    "Directive",
    "DirectiveKind",
    "KeyValue",
    "Policy",
    "Repeated",
    "ResolutionContext",
    "Scope",
    "StaticAnnotationSource",
    "annotate",
    "context_for",
    "locate",
]
