"""genetable: gene tables with codon usage bias and GC content from annotated genomes."""

__version__ = "0.1.0"

from genetable.gene_table import gene_table_parsed, gene_table_read  # noqa: E402

__all__ = ["__version__", "gene_table_parsed", "gene_table_read"]
