"""Qt-facing application state objects.

Widgets bind to the QObjects under `image_cropper.app.state`; the transform
engine itself stays Qt-free in `image_cropper.ops`.
"""
