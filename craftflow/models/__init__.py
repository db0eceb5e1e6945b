import importlib

from craftflow.models.blob import CollectionBlob


def import_all_models() -> None:
    for module_name in ("craftflow.models.blob",):
        importlib.import_module(module_name)


__all__ = ["CollectionBlob", "import_all_models"]
