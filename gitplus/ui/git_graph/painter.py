"""Row rendering for the git graph - paints RowDrawings with QPainter."""

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QBrush, QColor, QPainter, QPainterPath, QPen, QPixmap

from gitplus.graph.edges import CurveSegment, LineSegment, Marker, RowDrawing
from gitplus.graph.types import RowGeometry


def _segment_pen(color: str, width: float) -> QPen:
    pen = QPen(QColor(color), width)
    pen.setCapStyle(Qt.PenCapStyle.FlatCap)
    return pen


def _paint_marker(painter: QPainter, marker: Marker, geometry: RowGeometry) -> None:
    center = QPointF(*marker.center)
    color = QColor(marker.color)
    radius = marker.radius

    if marker.hollow:
        # Punch a hole through whatever lines run under the ring
        side = (radius + 1) * 2
        painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_Clear)
        painter.fillRect(
            QRectF(center.x() - radius - 1, center.y() - radius - 1, side, side),
            Qt.GlobalColor.transparent,
        )
        painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_SourceOver)

        painter.setPen(QPen(color, geometry.ring_width))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawEllipse(center, radius, radius)

        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(color))
        dot = geometry.ring_center_radius
        painter.drawEllipse(center, dot, dot)
    else:
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(color))
        painter.drawEllipse(center, radius, radius)


def paint_row(painter: QPainter, drawing: RowDrawing, geometry: RowGeometry) -> None:
    """
    Paint one row's segments in order, then its marker.

    The painter must be positioned at the row's top-left corner and should
    target a surface with an alpha channel, since the current-position ring
    clears the pixels beneath it.
    """
    painter.setRenderHint(QPainter.RenderHint.Antialiasing)

    for segment in drawing.segments:
        painter.setPen(_segment_pen(segment.color, geometry.line_width))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        if isinstance(segment, LineSegment):
            painter.drawLine(QPointF(*segment.start), QPointF(*segment.end))
        elif isinstance(segment, CurveSegment):
            path = QPainterPath()
            path.moveTo(QPointF(*segment.start))
            path.cubicTo(
                QPointF(*segment.control1),
                QPointF(*segment.control2),
                QPointF(*segment.end),
            )
            painter.drawPath(path)

    _paint_marker(painter, drawing.marker, geometry)


def render_row(
    drawing: RowDrawing,
    canvas_width: int,
    geometry: RowGeometry | None = None,
    device_pixel_ratio: float = 1.0,
) -> QPixmap:
    """
    Render a row onto its own transparent pixmap.

    The pixmap is canvas_width x row_height logical pixels. The backing store
    is scaled by device_pixel_ratio so lines stay crisp on high-DPI screens.
    """
    geometry = geometry or RowGeometry()
    pixmap = QPixmap(
        round(canvas_width * device_pixel_ratio),
        round(geometry.row_height * device_pixel_ratio),
    )
    pixmap.setDevicePixelRatio(device_pixel_ratio)
    if pixmap.isNull():
        return pixmap

    pixmap.fill(Qt.GlobalColor.transparent)
    painter = QPainter(pixmap)
    try:
        paint_row(painter, drawing, geometry)
    finally:
        painter.end()
    return pixmap
