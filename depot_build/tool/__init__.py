"""Command line tool for building images with depot."""
