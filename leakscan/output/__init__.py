"""Output: console formatting, the result file writer and the HTML report."""
