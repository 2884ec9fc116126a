"""
The MODEL layer contains pure data structures and the parameter/surface logic.
It has NO knowledge of the widgets or of the point-cloud generator.
It deals with parameters, surface geometry, and the error taxonomy.
"""
