"""
Mask identity and override operations.

Overrides let a caller refine the masks of an existing grade: add new
masks, merge adjustments into existing ones, remove one, or clear them all.
Matching is strict on identity first and then progressively looser.
"""

import logging
from typing import Dict, Any, List, Optional, Union

from ..models import Mask, ReferencePointGeometry
from .registry import REGISTRY

logger = logging.getLogger(__name__)

OPERATIONS = ('add', 'update', 'remove', 'remove_all', 'clear')

MaskLike = Union[Mask, Dict[str, Any]]


def _as_dict(mask: MaskLike) -> Dict[str, Any]:
    if isinstance(mask, Mask):
        data = mask.to_dict()
        if isinstance(mask.geometry, ReferencePointGeometry):
            data['reference_x'] = mask.geometry.reference_x
            data['reference_y'] = mask.geometry.reference_y
        return data
    data = dict(mask)
    for camel, snake in (('subCategoryId', 'sub_category_id'), ('referenceX', 'reference_x'),
                         ('referenceY', 'reference_y')):
        if camel in data and snake not in data:
            data[snake] = data.pop(camel)
    return data


def mask_identifier(mask: Optional[MaskLike]) -> str:
    """
    Stable identifier for a mask.

    The explicit id when present, else ``name:<name>``, else a key built
    from type, sub-category and the first digits of the reference point.
    """
    if mask is None:
        return 'mask:undefined'
    data = _as_dict(mask)
    if isinstance(data.get('id'), str) and data['id']:
        return data['id']
    if isinstance(data.get('name'), str) and data['name']:
        return f"name:{data['name']}"
    mask_type = str(data.get('type') or 'mask')
    sub = data.get('sub_category_id')
    sub = '' if sub is None else str(sub)
    rx = '' if data.get('reference_x') is None else str(data['reference_x'])[:4]
    ry = '' if data.get('reference_y') is None else str(data['reference_y'])[:4]
    return f"{mask_type}:{sub}:{rx}:{ry}"


def find_mask_index(masks: List[MaskLike], target: MaskLike, flexible: bool = True) -> int:
    """
    Position of ``target`` in ``masks``, -1 when absent.

    Strict identifier match first; with ``flexible`` the name, then the
    type (and sub-category when the target gives one) are tried.
    """
    wanted = mask_identifier(target)
    for index, mask in enumerate(masks):
        if mask_identifier(mask) == wanted:
            return index
    if not flexible:
        return -1

    target_data = _as_dict(target)
    name = target_data.get('name')
    if name:
        for index, mask in enumerate(masks):
            if _as_dict(mask).get('name') == name:
                return index

    raw_type = target_data.get('type')
    if raw_type:
        mask_type = REGISTRY.normalize(raw_type)
        sub = target_data.get('sub_category_id')
        for index, mask in enumerate(masks):
            data = _as_dict(mask)
            if REGISTRY.normalize(data.get('type')) != mask_type:
                continue
            if sub is not None and str(data.get('sub_category_id')) != str(sub):
                continue
            return index
    return -1


def _merged(previous: Mask, op: Dict[str, Any]) -> Mask:
    base = previous.to_dict()
    changes = {k: v for k, v in op.items() if k != 'op'}
    adjustments = {**base.get('adjustments', {}), **(changes.pop('adjustments', None) or {})}
    merged = {**base, **changes, 'adjustments': adjustments}
    merged['id'] = previous.id or op.get('id') or mask_identifier(op)
    return Mask.from_dict(merged)


def _new_mask(op: Dict[str, Any]) -> Mask:
    data = {k: v for k, v in op.items() if k != 'op'}
    data['id'] = op.get('id') or mask_identifier(op)
    return Mask.from_dict(data)


def apply_mask_overrides(masks: Optional[List[Mask]],
                         operations: Optional[List[Dict[str, Any]]]) -> List[Mask]:
    """
    Apply override operations to a mask list.

    Args:
        masks: Current masks; not modified
        operations: Mask dicts with an optional ``op`` key (default ``add``)

    Returns:
        New mask list
    """
    result = list(masks or [])
    for raw_op in operations or []:
        op = _as_dict(raw_op)
        operation = op.get('op') or 'add'
        if operation not in OPERATIONS:
            logger.warning(f"Unknown mask operation {operation!r}, treating as add")
            operation = 'add'

        if operation in ('remove_all', 'clear'):
            result = []
            continue

        index = find_mask_index(result, op)
        if operation == 'remove':
            if index >= 0:
                del result[index]
            else:
                logger.debug(f"No mask matches {mask_identifier(op)} for removal")
            continue

        # add and update both merge into an existing match
        if index >= 0:
            result[index] = _merged(result[index], op)
        else:
            result.append(_new_mask(op))
    return result
