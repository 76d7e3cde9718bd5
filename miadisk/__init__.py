"""MBR/EBR disk image records, free-space placement, users.txt editing and reports."""

__version__ = "0.1.0"
__all__ = ["structs", "diskutil", "users", "reports"]