from django.apps import apps
from django.db import connections
from django.http import JsonResponse

def healthz(request):
    kb = apps.get_app_config('clinical').knowledge_base
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
        return JsonResponse({'ok': True, 'db': bool(row and row[0]==1), 'interactionPairs': len(kb) if kb else 0})
    except Exception as e:
        return JsonResponse({'ok': False, 'error': str(e)}, status=500)
