from modification_service.parsing.structural_parser import dialect_for_path, is_parseable, parse

__all__ = ["dialect_for_path", "is_parseable", "parse"]
