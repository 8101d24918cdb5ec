"""Change diff

Turns a raw document delta into the set of layers whose components must be
rebuilt and the set of layers that were removed.

Data flow:
    DocumentChange → dependent layers → analyze names → partition → ChangeSet

A layer's dependents are the layer itself plus every named enclosing group.
Adjustment layers really affect everything beneath them; treating all named
ancestors as dependents over-approximates that.
"""

from ..core.ids import short_name
from ..document.base import Layer
from ..telemetry import get_logger
from .types import (
    ChangeSet,
    ChangeType,
    Component,
    DocumentChange,
    NameAnalyzer,
    SkippedComponent,
)

logger = get_logger(__name__)


def get_dependent_layers(layer: Layer) -> list[Layer]:
    """Collect a layer and its named ancestors, nearest first.

    The implicit root group is never included. Walks group links with an
    explicit loop so deeply nested documents cannot exhaust the stack.

    Args:
        layer: The changed layer

    Returns:
        Named layers whose components depend on ``layer``
    """
    dependents: list[Layer] = []
    seen: set[int] = set()
    stack: list[Layer] = [layer]

    while stack:
        current = stack.pop()
        if id(current) in seen or current.is_root:
            continue
        seen.add(id(current))

        if current.name:
            dependents.append(current)
        if current.group is not None:
            stack.append(current.group)

    return dependents


def analyze_layer(
    layer: Layer,
    analyze: NameAnalyzer,
) -> tuple[list[Component], list[SkippedComponent]]:
    """Parse one layer's name into components.

    Results without a destination file are reported as skipped. An analyzer
    exception is reported as a single skipped entry so sibling layers are
    unaffected.

    Returns:
        (components, skipped)
    """
    components: list[Component] = []
    skipped: list[SkippedComponent] = []

    try:
        results = analyze(layer.name or "")
    except Exception as e:
        logger.warning(f"[Diff] Failed to analyze layer {layer.id} '{short_name(layer.name)}': {e}")
        skipped.append(SkippedComponent(layer_id=layer.id, name=layer.name or "", errors=[str(e)]))
        return components, skipped

    for result in results:
        component = result.component
        if component is not None and component.file:
            components.append(component)
        else:
            name = component.name if component is not None else (layer.name or "")
            skipped.append(
                SkippedComponent(layer_id=layer.id, name=name, errors=list(result.errors))
            )

    return components, skipped


def compute_changes(change: DocumentChange, analyze: NameAnalyzer) -> ChangeSet:
    """Compute changed components and removed layers for one delta.

    Args:
        change: The validated change notification
        analyze: Layer name analyzer

    Returns:
        ChangeSet; a layer id in ``removed`` never appears in ``changed``
    """
    result = ChangeSet()
    if not change.layers:
        return result

    analyzed: set[int] = set()

    for layer_id, layer_change in change.layers.items():
        layer = layer_change.layer
        if layer is None:
            continue

        dependents = get_dependent_layers(layer)
        logger.debug(
            f"[Diff] Layers dependent on {layer_id}: {[dep.id for dep in dependents]}"
        )

        for dependent in dependents:
            if dependent.id in analyzed:
                continue
            analyzed.add(dependent.id)

            components, skipped = analyze_layer(dependent, analyze)
            result.changed[dependent.id] = components
            result.skipped.extend(skipped)
            for component in components:
                logger.debug(f"[Diff] Found changed component for layer {dependent.id}: {component.file}")

    # Removal wins over re-population within the same delta.
    for layer_id, layer_change in change.layers.items():
        if layer_change.type == ChangeType.REMOVED:
            result.removed.append(layer_id)
            result.changed.pop(layer_id, None)

    return result
