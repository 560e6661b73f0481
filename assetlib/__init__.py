"""Asset library services: item records and packaged downloads."""
