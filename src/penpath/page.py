"""SVG page for drawing shapes, written with svgwrite"""

from __future__ import annotations

import copy
import gzip
import io
import logging
from typing import Optional, Union

import svgwrite
import svgwrite.base
import svgwrite.container
import svgwrite.elementfactory
from svgwrite.extensions import Inkscape

from penpath.line_styles import LineStyles
from penpath.shape import Shape

logger = logging.getLogger(__name__)


class SvgPage:
    """A page (canvas) described by SVG with a viewbox to draw inside.

    The viewbox has its own coordinate-system left-to-right and bottom-to-top.
    Contains groups/layers:
        - root       -- (group) just contains the y-flip and translation to bottom left
            - main   -- editable->locked=False  --  hidden->display="block"
            - debug  -- editable->locked=False  --  hidden->display="none"
    """

    _inkscape: Inkscape  # extension to support layers

    drawing: svgwrite.Drawing
    root_group: svgwrite.container.Group
    main_layer: svgwrite.container.Group
    debug_layer: svgwrite.container.Group

    def __init__(
        self,
        canvas_width_mm: float,
        canvas_height_mm: float,
        viewbox_x_mm: float,
        viewbox_y_mm: float,
        viewbox_height_mm: float,
        viewbox_scale: float = 1.0,
    ):
        """
        Initialize the SVG page with specified canvas and viewbox dimensions.

        Args:
            canvas_width_mm (float): The width of the canvas (=whole page) in millimeters.
            canvas_height_mm (float): The height of the canvas (=whole page) in millimeters.
            viewbox_x_mm (float): The x-coordinate of the viewbox's top-left point in millimeters.
            viewbox_y_mm (float): The y-coordinate of the viewbox's top-left point in millimeters.
            viewbox_height_mm (float): The height of the viewbox in millimeters top-to-bottom.
            viewbox_scale (float, optional): The scale factor for the viewbox. Defaults to 1.0.
        """
        # canvas coordinates from viewbox perspective
        vb_x: float = -viewbox_x_mm * viewbox_scale
        vb_y: float = -viewbox_y_mm * viewbox_scale
        vb_width: float = viewbox_scale * canvas_width_mm
        vb_height: float = viewbox_scale * canvas_height_mm

        # profile="full" to support numbers with more than 4 decimal digits
        self.drawing = svgwrite.Drawing(
            size=(f"{canvas_width_mm}mm", f"{canvas_height_mm}mm"),
            viewBox=(f"{vb_x} {vb_y} {vb_width} {vb_height}"),
            profile="full",
        )

        # flip y-axis and set origin to bottom-left
        y_translate = -viewbox_height_mm * viewbox_scale
        self.root_group = self.drawing.g(id="root", transform=f"scale(1,-1) translate(0,{y_translate})")

        self._inkscape = Inkscape(self.drawing)
        self.main_layer = self._inkscape.layer(label="main", locked=False)
        self.debug_layer = self._inkscape.layer(label="debug", locked=False, display="none")

    def add(
        self,
        element: Union[svgwrite.base.BaseElement, svgwrite.elementfactory.ElementBuilder],
        add_to_debug_layer: bool = False,
    ) -> Union[svgwrite.base.BaseElement, svgwrite.elementfactory.ElementBuilder]:
        """Add a SVG element as subelement either to main or debug layer.

        Args:
            element (svgwrite.base.BaseElement): append this SVG element
            add_to_debug_layer (bool, optional): True if element should be added to debug layer. Defaults to False.

        Returns:
            svgwrite.base.BaseElement: the added element
        """
        if add_to_debug_layer:
            return self.debug_layer.add(element)
        return self.main_layer.add(element)

    def add_shape(
        self,
        shape: Shape,
        fill: str = "black",
        stroke: str = "none",
        stroke_width: Optional[float] = None,
        add_to_debug_layer: bool = False,
    ) -> Optional[svgwrite.base.BaseElement]:
        """Add a shape as SVG path element.

        Args:
            shape (Shape): the shape to draw
            fill (str, optional): fill color. Defaults to "black".
            stroke (str, optional): stroke color. Defaults to "none".
            stroke_width (float, optional): stroke width, omitted if None. Defaults to None.
            add_to_debug_layer (bool, optional): True to add to the debug layer. Defaults to False.

        Returns:
            svgwrite.base.BaseElement: the added path, None if the shape has nothing to draw
        """
        path_data = shape.get_svg_path()
        if not path_data:
            logger.debug("Skipping shape without drawable subpaths")
            return None
        attributes = {"fill": fill, "stroke": stroke}
        if stroke_width is not None:
            attributes["stroke_width"] = stroke_width
        return self.add(self.drawing.path(d=path_data, **attributes), add_to_debug_layer)

    def add_stroked_shape(
        self,
        shape: Shape,
        line_styles: Optional[LineStyles] = None,
        fill: str = "black",
        add_to_debug_layer: bool = False,
    ) -> Optional[svgwrite.base.BaseElement]:
        """Add the stroke outline of a shape as filled SVG path element.

        Args:
            shape (Shape): the shape to stroke
            line_styles (LineStyles, optional): stroke styles. Defaults to LineStyles().
            fill (str, optional): color of the outline. Defaults to "black".
            add_to_debug_layer (bool, optional): True to add to the debug layer. Defaults to False.

        Returns:
            svgwrite.base.BaseElement: the added path, None if the shape has nothing to draw
        """
        return self.add_shape(shape.get_stroked_shape(line_styles), fill, "none", None, add_to_debug_layer)

    def tostring(self, include_debug_layer: bool = False) -> str:
        """SVG document as string."""
        drawing = self.assemble_tree(
            copy.deepcopy(self.drawing),
            copy.deepcopy(self.root_group),
            copy.deepcopy(self.main_layer),
            copy.deepcopy(self.debug_layer),
            include_debug_layer,
        )
        return drawing.tostring()

    def save_as(
        self,
        filename: str,
        include_debug_layer: bool = False,
        pretty: bool = False,
        indent: int = 2,
        compressed: bool = False,
    ):
        """Save as SVG file

        Args:
            filename (str): path and filename
            include_debug_layer (bool, optional): True if file should contain debug_layer. Defaults to False.
            pretty (bool, optional): True for easy readable output. Defaults to False.
            indent (int, optional): Indention if pretty is enabled. Defaults to 2 spaces.
            compressed (bool, optional): Save as compressed svgz-file. Defaults to False.
        """
        drawing_for_save = self.assemble_tree(
            copy.deepcopy(self.drawing),
            copy.deepcopy(self.root_group),
            copy.deepcopy(self.main_layer),
            copy.deepcopy(self.debug_layer),
            include_debug_layer,
        )

        svg_buffer = io.StringIO()
        drawing_for_save.write(svg_buffer, pretty=pretty, indent=indent)
        output_data = svg_buffer.getvalue().encode("utf-8")
        if compressed:
            output_data = gzip.compress(output_data)

        with open(filename, "wb") as svg_file:
            svg_file.write(output_data)
        logger.info("Saved SVG page to %s", filename)

    @classmethod
    def assemble_tree(
        cls,
        drawing: svgwrite.Drawing,
        root_group: svgwrite.container.Group,
        main_layer: svgwrite.container.Group,
        debug_layer: Optional[svgwrite.container.Group] = None,
        include_debug_layer: bool = False,
    ) -> svgwrite.Drawing:
        """Assemble a tree out of the given SVG elements.

        Args:
            drawing (svgwrite.Drawing): The main SVG drawing element.
            root_group (svgwrite.container.Group): The root group of the drawing.
            main_layer (svgwrite.container.Group): The main layer of the drawing.
            debug_layer (svgwrite.container.Group): The debug layer of the drawing.
            include_debug_layer (bool, optional): Include the debug layer in the tree. Defaults to False.

        Returns:
            svgwrite.Drawing: The given drawing with assembled SVG drawing elements.
        """
        drawing.add(root_group)
        if include_debug_layer and debug_layer:
            root_group.add(debug_layer)
        root_group.add(main_layer)
        return drawing

    @classmethod
    def create_page_a4(
        cls,
        viewbox_width_mm: float,
        viewbox_height_mm: float,
        viewbox_scale: float = 1.0,
    ) -> SvgPage:
        """
        Create a new page with A4 dimensions, the viewbox centered on the page.

        Args:
            viewbox_width_mm (float): The width of the viewbox in mm.
            viewbox_height_mm (float): The height of the viewbox in mm.
            viewbox_scale (float, optional): The scale factor for the viewbox. Defaults to 1.0.

        Returns:
            SvgPage: A new page with A4 dimensions.
        """
        canvas_width_mm = 210
        canvas_height_mm = 297

        viewbox_x_mm = (canvas_width_mm - viewbox_width_mm) / 2
        viewbox_y_mm = (canvas_height_mm - viewbox_height_mm) / 2

        return SvgPage(
            canvas_width_mm,
            canvas_height_mm,
            viewbox_x_mm,
            viewbox_y_mm,
            viewbox_height_mm,
            viewbox_scale,
        )


def main():
    """Main"""
    logging.basicConfig(level=logging.INFO)
    output_filename = "example_shapes.svg"

    svg_page = SvgPage.create_page_a4(170, 120)
    svg_page.add_shape(Shape().rect(10, 10, 40, 30), fill="none", stroke="black", stroke_width=0.5)
    svg_page.add_shape(Shape().circle(85, 60, 20), fill="red")
    svg_page.add_shape(Shape("M 120 20 Q 140 80 160 20 A 20 10 30 0 1 120 20 Z"), fill="green")
    svg_page.add_stroked_shape(
        Shape().move_to(10, 100).line_to(60, 70).line_to(110, 100),
        LineStyles(line_width=4, line_join="round", line_cap="round"),
        fill="blue",
    )
    svg_page.save_as(output_filename, include_debug_layer=True, pretty=True, indent=2)


if __name__ == "__main__":
    main()
