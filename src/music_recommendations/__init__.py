"""Music Recommendations.

Submit songs, vote them up or down, and pull them back out by popularity or
through a score-weighted random draw. Served over HTTP and as MCP tools.
"""

__version__ = "0.1.0"
