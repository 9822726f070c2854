import base64
import io
from functools import lru_cache

import svgwrite
from PIL import Image
from PIL import ImageDraw
from PIL import ImageFont

from gitwrapped.services.layout import Avatar
from gitwrapped.services.layout import Layout
from gitwrapped.services.layout import Monospace
from gitwrapped.services.layout import Polyline
from gitwrapped.services.layout import Rect
from gitwrapped.services.layout import Text

FONT_FAMILY = "-apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif"
MONO_FAMILY = "ui-monospace, SFMono-Regular, Menlo, monospace"
AVATAR_PLACEHOLDER = "#e5e7eb"

PIL_ANCHORS = {"start": "ls", "middle": "ms", "end": "rs"}

# Pillow errors for images that cannot be decoded or exceed MAX_IMAGE_PIXELS.
IMAGE_ERRORS = (OSError, ValueError, Image.DecompressionBombError)


def avatar_data_uri(content: bytes) -> str:
    """Encode avatar bytes as an inline data URI."""

    with Image.open(io.BytesIO(content)) as image:
        mime = Image.MIME.get(image.format or "", "image/png")
    return f"data:{mime};base64,{base64.b64encode(content).decode('ascii')}"


def render_svg(layout: Layout, avatar_href: str | None = None) -> str:
    """Render a layout as an SVG document string.

    `avatar_href` replaces the avatar's remote URL, typically with a data
    URI so the SVG is self-contained.
    """

    size = (layout.width, layout.height)
    dwg = svgwrite.Drawing(size=size, profile="full", debug=False)
    dwg.add(dwg.rect(insert=(0, 0), size=size, fill=layout.background))

    for element in layout.elements:
        if isinstance(element, Rect):
            dwg.add(
                dwg.rect(
                    insert=(element.x, element.y),
                    size=(element.width, element.height),
                    rx=element.radius,
                    ry=element.radius,
                    fill=element.fill,
                )
            )
        elif isinstance(element, Text):
            dwg.add(
                dwg.text(
                    element.text,
                    insert=(element.x, element.y),
                    font_size=element.size,
                    font_family=FONT_FAMILY,
                    font_weight="bold" if element.bold else "normal",
                    fill=element.fill,
                    text_anchor=element.anchor,
                )
            )
        elif isinstance(element, Polyline):
            dwg.add(
                dwg.polyline(
                    points=element.points,
                    stroke=element.stroke,
                    stroke_width=element.width,
                    fill="none",
                )
            )
        elif isinstance(element, Avatar):
            _svg_avatar(dwg, element, avatar_href or element.url)
        elif isinstance(element, Monospace):
            for index, line in enumerate(element.lines):
                dwg.add(
                    dwg.text(
                        line.replace(" ", "\u00a0"),
                        insert=(element.x, element.y + index * element.line_height),
                        font_size=element.size,
                        font_family=MONO_FAMILY,
                        fill=element.fill,
                    )
                )

    return dwg.tostring()


def _svg_avatar(dwg: svgwrite.Drawing, avatar: Avatar, href: str | None) -> None:
    radius = avatar.size / 2
    center = (avatar.x + radius, avatar.y + radius)
    if not href:
        dwg.add(dwg.circle(center=center, r=radius, fill=AVATAR_PLACEHOLDER))
        return

    clip = dwg.defs.add(dwg.clipPath(id="avatar-clip"))
    clip.add(dwg.circle(center=center, r=radius))
    image = dwg.image(
        href=href, insert=(avatar.x, avatar.y), size=(avatar.size, avatar.size)
    )
    image["clip-path"] = "url(#avatar-clip)"
    dwg.add(image)


@lru_cache(maxsize=32)
def _font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    return ImageFont.load_default(size=size)


def rasterize_png(
    layout: Layout,
    avatar: bytes | None = None,
    scale: int = 2,
    background: str = "#ffffff",
) -> bytes:
    """Draw a layout onto a bitmap at `scale` times its size and encode it as PNG."""

    image = Image.new("RGB", (layout.width * scale, layout.height * scale), background)
    draw = ImageDraw.Draw(image)

    def s(value: float) -> float:
        return value * scale

    for element in layout.elements:
        if isinstance(element, Rect):
            box = [
                s(element.x),
                s(element.y),
                s(element.x + element.width),
                s(element.y + element.height),
            ]
            if element.radius:
                draw.rounded_rectangle(box, radius=s(element.radius), fill=element.fill)
            else:
                draw.rectangle(box, fill=element.fill)
        elif isinstance(element, Text):
            draw.text(
                (s(element.x), s(element.y)),
                element.text,
                fill=element.fill,
                font=_font(element.size * scale),
                anchor=PIL_ANCHORS[element.anchor],
                stroke_width=1 if element.bold else 0,
                stroke_fill=element.fill,
            )
        elif isinstance(element, Polyline):
            if len(element.points) > 1:
                draw.line(
                    [(s(x), s(y)) for x, y in element.points],
                    fill=element.stroke,
                    width=int(s(element.width)),
                    joint="curve",
                )
        elif isinstance(element, Avatar):
            _paste_avatar(image, draw, element, avatar, scale)
        elif isinstance(element, Monospace):
            font = _font(element.size * scale)
            for row, line in enumerate(element.lines):
                baseline = s(element.y + row * element.line_height)
                for column, char in enumerate(line):
                    if char != " ":
                        draw.text(
                            (s(element.x + column * element.cell_width), baseline),
                            char,
                            fill=element.fill,
                            font=font,
                            anchor="ls",
                        )

    output = io.BytesIO()
    image.save(output, format="PNG")
    return output.getvalue()


def _paste_avatar(
    image: Image.Image,
    draw: ImageDraw.ImageDraw,
    avatar: Avatar,
    content: bytes | None,
    scale: int,
) -> None:
    size = avatar.size * scale
    origin = (int(avatar.x * scale), int(avatar.y * scale))
    if content is None:
        draw.ellipse(
            [origin[0], origin[1], origin[0] + size - 1, origin[1] + size - 1],
            fill=AVATAR_PLACEHOLDER,
        )
        return

    with Image.open(io.BytesIO(content)) as source:
        picture = source.convert("RGBA").resize((size, size))
    mask = Image.new("L", (size, size), 0)
    ImageDraw.Draw(mask).ellipse((0, 0, size - 1, size - 1), fill=255)
    image.paste(picture, origin, mask)
