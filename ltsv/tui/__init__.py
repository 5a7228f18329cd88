"""Terminal viewer for .ltsv files (requires the 'tui' extra)."""
