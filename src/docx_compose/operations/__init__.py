"""
Operations package for Document manipulation.

This package contains the merge engine, split by the part it imports, and
merge plans that drive it from a YAML or JSON file.
"""

from .batch import MergePlan, MergePlanEntry, MergePlanResult, apply_merge_plan, load_merge_plan
from .merge import MergeContext, MergeOperations, MergeResult
from .merge_images import ImageImporter, find_image_parts
from .merge_relationships import RelationshipImporter

__all__ = [
    "ImageImporter",
    "MergeContext",
    "MergeOperations",
    "MergePlan",
    "MergePlanEntry",
    "MergePlanResult",
    "MergeResult",
    "RelationshipImporter",
    "apply_merge_plan",
    "find_image_parts",
    "load_merge_plan",
]
