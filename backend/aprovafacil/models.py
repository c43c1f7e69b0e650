# Este arquivo serve como um ponto de entrada para garantir que todos os modelos
# sejam importados e registrados no Base do SQLAlchemy antes que a aplicação
# tente usá-los, evitando erros de dependência circular.

from aprovafacil.core.database import Base

from aprovafacil.users.models import User, UserRole
from aprovafacil.audit.models import AuditLog
from aprovafacil.concursos.models import ConcursoCategoria, CategoriaDisciplina, Concurso
from aprovafacil.preferences.models import UserConcursoPreference
from aprovafacil.simulados.models import Simulado, SimuladoQuestion, UserSimuladoProgress
from aprovafacil.flashcards.models import Flashcard, UserFlashcardProgress
from aprovafacil.apostilas.models import Apostila, ApostilaContent, UserApostilaProgress
from aprovafacil.mapa_assuntos.models import MapaAssunto, UserMapaAssuntoStatus
from aprovafacil.questoes_semanais.models import QuestoesSemanais, UserQuestoesSemanaisProgress
from aprovafacil.plano_estudos.models import PlanoEstudo
from aprovafacil.dashboard.models import UserDisciplineStats, UserPerformanceCache
from aprovafacil.admin.models import CacheConfig
