"""enums, exceptions and logging shared by every layer"""
