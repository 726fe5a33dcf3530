from infrastructure.library.factory import (  # noqa: F401
    LibraryStorageFactory,
    build_library_storage,
    resolve_backend,
)

__all__ = ["LibraryStorageFactory", "build_library_storage", "resolve_backend"]
