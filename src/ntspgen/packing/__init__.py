"""Package layout planning, binary packing and inspection."""
