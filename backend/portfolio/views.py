import logging

from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, parser_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response

from . import services
from .error_handlers import ValidationError, success_response, validate_json_structure
from .models import Image
from .payloads import get_json_payload, serialize_image, serialize_project

# Setup logger for this module
logger = logging.getLogger(__name__)


# --- Images ---
@api_view(['GET'])
def list_images(request):
    """Return every image keyed by its id."""
    images = {image.id: serialize_image(image) for image in Image.objects.all()}
    logger.info(f"Retrieved {len(images)} images")
    return Response(images, status=status.HTTP_200_OK)


@api_view(['GET', 'POST', 'DELETE'])
def image_detail(request, image_id):
    """
    GET returns one image, POST creates or replaces its metadata,
    DELETE removes it from the image host and then from the database.
    """
    if request.method == 'GET':
        image = services.get_image_or_404(image_id)
        return Response(serialize_image(image))

    if request.method == 'POST':
        image = services.save_image(image_id, get_json_payload(request))
        return success_response({"id": image.id, "image": serialize_image(image)})

    services.delete_image(image_id)
    return success_response()


@api_view(['POST'])
@parser_classes([MultiPartParser, FormParser])
def upload_image(request):
    """
    Upload an image file to the image host.
    Expects form-data with a single 'image' file field.
    """
    if 'image' not in request.FILES:
        raise ValidationError("No file uploaded", field='image')

    result = services.handle_image_upload(request.FILES['image'])
    return success_response(result)


# --- Projects ---
@api_view(['GET', 'POST'])
def project_list(request):
    if request.method == 'GET':
        projects = services.list_projects(request.GET.get('category'))
        return Response({"projects": [serialize_project(p) for p in projects]})

    data = get_json_payload(request)
    validate_json_structure(data, dict)
    project = services.create_project(data)
    return success_response({"id": project.id, "project": serialize_project(project)},
                            status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
def project_detail(request, project_id):
    if request.method == 'GET':
        return Response(serialize_project(services.get_project_or_404(project_id)))

    if request.method == 'PUT':
        data = get_json_payload(request)
        validate_json_structure(data, dict)
        project = services.update_project(project_id, data)
        return success_response({"id": project.id, "project": serialize_project(project)})

    services.delete_project(project_id)
    return success_response()


@api_view(['PUT'])
def reorder_projects(request):
    """
    Expects JSON: {"category": "residential" | "commercial", "order": [<project id>, ...]}
    """
    data = get_json_payload(request)
    validate_json_structure(data, dict)
    projects = services.reorder_projects(data.get('category'), data.get('order'))
    return success_response({
        "category": data.get('category'),
        "order": [p.id for p in projects],
    })


# --- Config ---
@api_view(['GET'])
def get_config(request):
    """Expose the image host account id so clients can build delivery URLs."""
    return Response({"accountId": settings.CLOUDFLARE_ACCOUNT_ID})
