""
"Qt widgets for the PolyNodes editor: canvas, inspector and main window."
""
