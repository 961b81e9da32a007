"""Datapack editor: browse, edit and re-export zip datapacks."""
