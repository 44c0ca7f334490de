"""
Tag Watcher - Monitor GitHub repositories and send Telegram notifications.

A Python application that polls GitHub repositories for newly published
releases or tags and announces each new version to a Telegram chat.
"""

__version__ = "1.0.0"
__author__ = "Grégoire Compagnon"
__email__ = "obeone@obeone.org"
