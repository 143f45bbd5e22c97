"""
Read-side views over the published snapshot.
"""
