"""
Business operations.

Each public function runs one unit of work against the session it is given
and either commits it whole or rolls it back.
"""
