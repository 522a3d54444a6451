from faker import Faker
from faker.providers import BaseProvider


class JotterProvider(BaseProvider):
    """
    Jotter 演示数据生成器
    生成文章标题、分类和简单的 HTML 正文
    """

    categories = ['技术', '生活', '读书笔记', '旅行', '随笔', '产品', '未分类']

    title_prefixes = ['浅谈', '关于', '再论', '初探', '记一次', '如何理解', '重新认识']

    def article_category(self):
        return self.random_element(self.categories)

    def article_title(self):
        return f"{self.random_element(self.title_prefixes)}{self.generator.word()}{self.generator.word()}"

    def html_paragraphs(self, count=3):
        """生成 <p> 包裹的若干段落"""
        return ''.join(f"<p>{self.generator.paragraph()}</p>" for _ in range(count))


# 初始化 Faker 并添加自定义 Provider
fake = Faker('zh_CN')
fake.add_provider(JotterProvider)
