"""
Ingestion layer: listing import files and their validation contracts.

Submodules:
  listing_import — JSON/CSV parser for sold and active character listings

Imports are all-or-nothing: a file with any invalid row is rejected as a
whole, with one error message naming the failing entries.
"""
