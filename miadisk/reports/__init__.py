"""Reports over disk images and bitmaps: MBR, disk layout, bitmaps and tree."""

__all__ = ["common", "bitmap", "mbr_report", "disk_report", "tree"]