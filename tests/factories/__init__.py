"""Factory Boy models and entity factories shared by the tests."""
