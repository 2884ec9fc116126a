"""
The VIEW layer contains the Qt widgets: controls, canvas and main window.
Widgets only forward raw values; interpretation lives in the model.
"""
