from __future__ import annotations
import importlib
import pkgutil
from typing import Dict, List, Optional, Type

from ..detectors.base import Detector, DetectorServices


def _discover_package_classes(pkg, base_cls) -> Dict[str, Type]:
    discovered: Dict[str, Type] = {}
    for m in pkgutil.iter_modules(pkg.__path__, pkg.__name__ + "."):
        module = importlib.import_module(m.name)
        for attr_name in dir(module):
            obj = getattr(module, attr_name)
            if isinstance(obj, type) and issubclass(obj, base_cls) and obj is not base_cls:
                # shared bases leave NAME empty
                name = (getattr(obj, "NAME", "") or "").lower()
                if name:
                    discovered[name] = obj
    return discovered


def detector_classes() -> Dict[str, Type[Detector]]:
    from .. import detectors as detectors_pkg  # lazy import
    classes = _discover_package_classes(detectors_pkg, Detector)
    return dict(sorted(classes.items(), key=lambda item: (item[1].ORDER, item[0])))


def discover_detectors(services: Optional[DetectorServices] = None) -> Dict[str, Detector]:
    """Instantiate every detector, in run order, sharing one set of services."""
    services = services or DetectorServices()
    return {name: cls(services) for name, cls in detector_classes().items()}


def select_detectors(all_detectors: Dict[str, Detector], selector: str) -> Dict[str, Detector]:
    selector = (selector or "").strip().lower()
    if selector == "all" or selector == "*":
        return dict(all_detectors)
    wanted: List[str] = [t.strip() for t in selector.split(",") if t.strip()]
    return {name: det for name, det in all_detectors.items() if name in wanted}
