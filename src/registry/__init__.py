"""Package repository indexes."""
