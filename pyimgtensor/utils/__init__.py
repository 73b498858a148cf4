from .optional_deps import install_hint, optional_import, pip_name, require

__all__ = ["install_hint", "optional_import", "pip_name", "require"]
