"""Language server (install the ``lsp`` extra)."""
