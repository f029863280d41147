# tasks/serializers.py
from rest_framework import serializers

from .models import Task


class TaskSerializer(serializers.ModelSerializer):
    userId = serializers.CharField(source='user_id', read_only=True)
    aiSuggestion = serializers.CharField(source='ai_suggestion', read_only=True, allow_null=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Task
        fields = [
            'id', 'userId', 'title', 'description', 'deadline',
            'priority', 'status', 'aiSuggestion', 'createdAt',
        ]
        read_only_fields = ['id']

    def validate_title(self, value):
        if not value.strip():
            raise serializers.ValidationError("Title is required")
        return value.strip()
