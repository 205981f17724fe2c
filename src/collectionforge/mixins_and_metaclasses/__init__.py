"""Mixins for building collection classes."""

from .collection_mixin import Collection, CollectionMixin
