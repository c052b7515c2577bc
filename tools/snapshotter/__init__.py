"""ClickUp Snapshotter – materialize a ClickUp space into monthly JSON snapshots.

Supports:
  • Building the current month's snapshot (lists → statuses → tasks)
  • Embedding image attachments as small JPEG data-URI thumbnails
  • Backfilling missing historical months from a published mirror
  • Idempotent re-runs (current month is always rewritten)
"""
