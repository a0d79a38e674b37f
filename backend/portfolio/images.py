"""
Responsive image URLs for the gallery.

Each rendering context (mobile thumbnail, desktop column card, panel galleries,
lightbox) has its own width ladder and `sizes` hint, sized from the rendered
CSS dimensions at common viewport widths and device pixel ratios. URLs use
the image host's flexible variants (`w=...,h=...,fit=...`).
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

DELIVERY_BASE = 'https://imagedelivery.net'


@dataclass(frozen=True)
class ImageContext:
    widths: Tuple[int, ...]
    sizes: str


@dataclass(frozen=True)
class CropPreset:
    ratio: Tuple[int, int]  # (width, height)
    fit: str = 'cover'


IMAGE_CONTEXTS: Dict[str, ImageContext] = {
    # 100vw on phones, up to 3x DPR
    'mobileThumb': ImageContext((400, 600, 900), '100vw'),
    'mobileGallery': ImageContext((400, 600, 800), 'calc(100vw - 32px)'),
    # max-width 24vw: 346px @1440, 614px @2560, doubled for retina
    'desktopResidentialThumb': ImageContext((300, 400, 500, 700, 1000), '24vw'),
    # max-width 12vw
    'desktopCommercialThumb': ImageContext((150, 200, 300, 450), '12vw'),
    # two-column grid inside the 44.3vw left panel
    'leftPanelGallery': ImageContext((250, 350, 450, 600, 800), '21vw'),
    'rightPanelGallery': ImageContext((200, 300, 400, 600), '18.2vw'),
    'lightbox': ImageContext((800, 1200, 1600, 2000, 2560), '100vw'),
}

CROP_PRESETS: Dict[str, CropPreset] = {
    'mobileResidential': CropPreset((3, 4)),
    'mobileCommercial': CropPreset((16, 9)),
    'desktopCommercialSquare': CropPreset((1, 1)),
}


@dataclass
class ResponsiveImage:
    src: str = ''
    srcset: str = ''
    sizes: str = ''
    focal_point: str = '50% 50%'
    alt: str = ''

    def as_dict(self) -> dict:
        data = asdict(self)
        data['focalPoint'] = data.pop('focal_point')
        return data


def js_round(value: float) -> int:
    """Round half up, matching how the browser rounds CSS percentages."""
    return int(math.floor(value + 0.5))


def build_variant(width: Optional[int] = None, height: Optional[int] = None,
                  fit: Optional[str] = None, quality: Optional[int] = None,
                  format: Optional[str] = None) -> str:
    params = []
    if width:
        params.append(f"w={width}")
    if height:
        params.append(f"h={height}")
    if fit:
        params.append(f"fit={fit}")
    if quality:
        params.append(f"q={quality}")
    if format:
        params.append(f"f={format}")
    return ','.join(params) if params else 'public'


class ImageCatalog:
    """
    URL builder over a mapping of image id -> image data in the frontend
    shape (see site_data.fetch_images).
    """

    def __init__(self, images: Dict[str, dict], delivery_base: str = DELIVERY_BASE):
        self.images = images
        self.delivery_base = delivery_base.rstrip('/')

    def get(self, image_id: str) -> Optional[dict]:
        return self.images.get(image_id)

    def has(self, image_id: str) -> bool:
        return image_id in self.images

    def all_ids(self) -> List[str]:
        return list(self.images.keys())

    def focal_point_style(self, image_id: str) -> str:
        """CSS object-position for the image's focal point."""
        image = self.get(image_id)
        focal = (image or {}).get('focalPoint')
        if not focal:
            return '50% 50%'
        return f"{js_round(focal['x'] * 100)}% {js_round(focal['y'] * 100)}%"

    def orientation(self, image_id: str) -> str:
        image = self.get(image_id)
        if not image or not image.get('width') or not image.get('height'):
            return 'square'
        ratio = image['width'] / image['height']
        if ratio > 1.05:
            return 'landscape'
        if ratio < 0.95:
            return 'portrait'
        return 'square'

    def url(self, image_id: str, **options) -> str:
        image = self.get(image_id)
        if not image:
            logger.warning(f"Image not found: {image_id}")
            return ''
        variant = build_variant(**options)
        return f"{self.delivery_base}/{image['accountHash']}/{image['cloudflareId']}/{variant}"

    def _options(self, width: int, crop: Optional[CropPreset], quality: int) -> dict:
        options = {'width': width, 'quality': quality, 'format': 'auto'}
        if crop:
            options['height'] = js_round(width * (crop.ratio[1] / crop.ratio[0]))
            options['fit'] = crop.fit
        else:
            options['fit'] = 'scale-down'
        return options

    def srcset(self, image_id: str, widths: Sequence[int], crop: Optional[CropPreset] = None,
               quality: int = 80) -> str:
        return ', '.join(
            f"{self.url(image_id, **self._options(w, crop, quality))} {w}w" for w in widths
        )

    def default_src(self, image_id: str, widths: Sequence[int], crop: Optional[CropPreset] = None,
                    quality: int = 80) -> str:
        """The middle width of the ladder."""
        width = widths[len(widths) // 2]
        return self.url(image_id, **self._options(width, crop, quality))

    def responsive(self, image_id: str, context: ImageContext, crop: Optional[CropPreset] = None,
                   quality: int = 80) -> ResponsiveImage:
        image = self.get(image_id)
        if not image:
            return ResponsiveImage()
        return ResponsiveImage(
            src=self.default_src(image_id, context.widths, crop, quality),
            srcset=self.srcset(image_id, context.widths, crop, quality),
            sizes=context.sizes,
            focal_point=self.focal_point_style(image_id),
            alt=image.get('alt', ''),
        )

    def mobile_thumbnail(self, image_id: str, category: str) -> ResponsiveImage:
        crop = CROP_PRESETS['mobileResidential'] if category == 'residential' else CROP_PRESETS['mobileCommercial']
        return self.responsive(image_id, IMAGE_CONTEXTS['mobileThumb'], crop)

    def desktop_thumbnail(self, image_id: str, category: str) -> ResponsiveImage:
        # Commercial cards are square; only landscape originals need the crop
        crop = None
        if category == 'commercial' and self.orientation(image_id) == 'landscape':
            crop = CROP_PRESETS['desktopCommercialSquare']
        context = IMAGE_CONTEXTS['desktopResidentialThumb'] if category == 'residential' \
            else IMAGE_CONTEXTS['desktopCommercialThumb']
        return self.responsive(image_id, context, crop)

    def mobile_gallery_image(self, image_id: str) -> ResponsiveImage:
        return self.responsive(image_id, IMAGE_CONTEXTS['mobileGallery'])

    def left_panel_gallery_image(self, image_id: str) -> ResponsiveImage:
        return self.responsive(image_id, IMAGE_CONTEXTS['leftPanelGallery'])

    def right_panel_gallery_image(self, image_id: str) -> ResponsiveImage:
        return self.responsive(image_id, IMAGE_CONTEXTS['rightPanelGallery'])

    def lightbox_image(self, image_id: str) -> ResponsiveImage:
        return self.responsive(image_id, IMAGE_CONTEXTS['lightbox'], quality=90)
