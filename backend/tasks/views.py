# tasks/views.py
import logging
from datetime import datetime

from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from accounts.serializers import UserSerializer

from . import services
from .exceptions import TaskServiceError
from .models import Task
from .serializers import TaskSerializer

logger = logging.getLogger(__name__)


def _error_response(exc):
    return Response({
        'success': False,
        'error': exc.message,
        'code': exc.code
    }, status=exc.status_code)


@api_view(['GET', 'POST'])
def task_list(request):
    """
    GET  /api/tasks/  - all tasks owned by the caller
    POST /api/tasks/  - create a task

    Required fields: title
    Optional: description, deadline, priority, status
    """
    if request.method == 'GET':
        tasks = Task.objects.filter(user=request.user)
        return Response({'tasks': TaskSerializer(tasks, many=True).data}, status=status.HTTP_200_OK)

    serializer = TaskSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({
            'success': False,
            'error': 'Invalid task data',
            'details': serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    task = serializer.save(user=request.user)
    return Response({'task': TaskSerializer(task).data}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
def task_detail(request, task_id):
    """
    GET    /api/tasks/<id>/
    PUT    /api/tasks/<id>/  - partial update of the editable fields
    DELETE /api/tasks/<id>/

    Tasks owned by other users are reported as not found.
    """
    try:
        task = services.get_owned_task(request.user, task_id)
    except TaskServiceError as e:
        return _error_response(e)

    if request.method == 'GET':
        return Response({'task': TaskSerializer(task).data}, status=status.HTTP_200_OK)

    if request.method == 'DELETE':
        task.delete()
        return Response({'success': True}, status=status.HTTP_200_OK)

    serializer = TaskSerializer(task, data=request.data, partial=True)
    if not serializer.is_valid():
        return Response({
            'success': False,
            'error': 'Failed to update task',
            'details': serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    task = serializer.save()
    return Response({'task': TaskSerializer(task).data}, status=status.HTTP_200_OK)


@api_view(['POST'])
def generate_suggestion(request):
    """
    POST /api/tasks/suggestions/

    Generate the one-time AI suggestion for a task and return the updated task.

    Request body: { "taskId": "..." }
    """
    try:
        task_id = request.data.get('taskId') if isinstance(request.data, dict) else None
        task = services.generate_suggestion(request.user, task_id)
        return Response({'task': TaskSerializer(task).data}, status=status.HTTP_200_OK)

    except TaskServiceError as e:
        if e.status_code >= 500:
            logger.warning("AI suggestion failed for user %s: %s", request.user.pk, e.message)
        return _error_response(e)
    except Exception:
        logger.exception("AI suggestion error")
        return Response({
            'success': False,
            'error': 'Failed to generate AI suggestion'
        }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['POST'])
def generate_schedule(request):
    """
    POST /api/schedule/generate/

    Order the caller's incomplete tasks into time slots. Falls back to the
    local priority/deadline ordering whenever the AI service is unusable.
    """
    try:
        result = services.generate_schedule(request.user)
        return Response(result, status=status.HTTP_200_OK)

    except TaskServiceError as e:
        return _error_response(e)
    except Exception:
        logger.exception("Schedule generation error")
        return Response({
            'success': False,
            'error': 'Failed to generate AI schedule'
        }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['POST'])
def activate_premium(request):
    """
    POST /api/premium/activate/

    Switch the caller to the premium plan. Payment is verified elsewhere.
    """
    user = request.user
    if not user.is_premium:
        user.is_premium = True
        user.save(update_fields=['is_premium'])
        logger.info("Activated premium for user %s", user.pk)

    return Response({'user': UserSerializer(user).data}, status=status.HTTP_200_OK)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def health_check(request):
    """
    GET /api/health/

    Simple health check endpoint to verify API is running.
    """
    return Response({
        'status': 'healthy',
        'message': 'Smart To-Do API is running',
        'timestamp': datetime.now().isoformat()
    }, status=status.HTTP_200_OK)
