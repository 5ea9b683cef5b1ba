"""
format-modifications: reformat only the lines you changed.

The entry points are format_modifications.reformat.format_modifications
for a single formatter, and format_modifications.registry for documents
with formatters attached to them.
"""
