"""SiteDesk: conversational back-office assistant engine.

Drives administrators, field employees and customers through stepped
data-collection flows over a chat channel, with session persistence,
site context and administrator delegation.
"""

__version__ = "0.1.0"
