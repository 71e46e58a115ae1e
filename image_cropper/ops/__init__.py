"""Use-case / operations layer.

Pure viewport math and gesture translation used by the cropper UI.

Nothing in this package imports Qt; the widgets in `image_cropper.ui_canvas`
and `image_cropper.ui_cropper` feed it plain numbers and read back new
`TransformState` values.
"""
